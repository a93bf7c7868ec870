"""
Xpense - Transaction Composer

Client-side composition of transactions for the Xpense personal finance API.

DESIGN PRINCIPLES:
1. One reducer decides what survives a mode or entry-type switch
2. One predicate decides whether a draft can be submitted
3. The payload matches the API shape exactly, JSON or multipart
4. A submission is sent once; failures keep the draft for correction
"""

__version__ = "1.0.0"
__author__ = "Xpense Team"
