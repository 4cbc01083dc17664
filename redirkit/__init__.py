"""Building blocks for transparent TCP redirection: Base64, an AVL tree, stream ciphers, base settings and direct connections."""

__version__ = "0.71.0"