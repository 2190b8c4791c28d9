from threadsearch.messages.store import MessageStore

__all__ = ["MessageStore"]
