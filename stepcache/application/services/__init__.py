from .menu_service import InMemoryMenuRepository, MenuService

__all__ = ["InMemoryMenuRepository", "MenuService"]
