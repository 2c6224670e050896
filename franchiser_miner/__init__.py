"""
Franchiser Miner - mint Franchiser tokens whenever the Rig price is right.

Funds stay in a guarded controller contract; an off-chain monitor polls it
and asks it to mint when the price sits under the owner's ceiling.
"""

__version__ = "0.1.0"
