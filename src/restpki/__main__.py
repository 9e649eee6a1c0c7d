"""
Entry point for `python -m restpki`.

Usage:
    python -m restpki pades start document.pdf --cert signer.cer
    python -m restpki open document.pdf
    python -m restpki info signature.p7s
"""

from .ui.cli import main

main()
