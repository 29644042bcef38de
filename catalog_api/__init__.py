"""Product catalog API: auth, product CRUD and image uploads."""

__version__ = "1.0.0"
