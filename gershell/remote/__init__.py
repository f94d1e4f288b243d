from .client import ChangeInfo, GerritClient, GerritError

__all__ = ["ChangeInfo", "GerritClient", "GerritError"]
