"""GreenReceipt API: receipts and billing for shops and their customers."""

__version__ = "1.0.0"
