from dealerdesk.drafts.cache import DraftCache

__all__ = ["DraftCache"]
