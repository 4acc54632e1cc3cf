from lunarlink.models.code import Code
from lunarlink.models.history import History
from lunarlink.models.batch import Batch
from lunarlink.models.stats import Stats

__all__ = ["Code", "History", "Batch", "Stats"]
