"""Control core for iiyama commercial displays over the LAN control protocol."""

__version__ = "0.1.0"
