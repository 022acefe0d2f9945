from .bootstrap import BootstrapFormMixin

__all__ = ["BootstrapFormMixin"]
