"""MedTrace - движок целостности провенанса для доставки медикаментов."""

__version__ = "0.1.0"
