from relaybank.config.settings import LinkSettings

__all__ = ["LinkSettings"]
