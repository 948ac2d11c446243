"""Configuration, agent metrics, rate limiting, health status rendering and container helpers for a Forta scan node."""

__version__ = "0.1.0"