"""Конфигурация проекта MedTrace."""
