"""NetOps Relay — brokers chat turns between operators, an AI model, and Webex/Teams."""

__version__ = "0.1.0"
