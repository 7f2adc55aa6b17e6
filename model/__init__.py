from model.LinearSystem import LinearSystem

__all__ = ['LinearSystem']
