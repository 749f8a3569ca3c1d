"""Доменный слой: интерфейсы и исключения."""
