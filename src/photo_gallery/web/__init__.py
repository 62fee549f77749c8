"""Web surface of the photo gallery."""
