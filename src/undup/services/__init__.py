from .link_service import ApplyReport, LinkService

__all__ = ["ApplyReport", "LinkService"]
