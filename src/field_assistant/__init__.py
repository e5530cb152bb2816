"""Field Assistant - chat broker for Azure AI Foundry."""

__version__ = "0.1.0"
