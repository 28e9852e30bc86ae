from .tree import CallTreeNode

__all__ = ["CallTreeNode"]
