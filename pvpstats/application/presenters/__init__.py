from .stats_presenter import StatsPresenter

__all__ = ["StatsPresenter"]
