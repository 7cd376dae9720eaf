# finance_tracker/outputs/base.py
from abc import ABC, abstractmethod

class BaseOutput(ABC):
    @abstractmethod
    def write(self, transactions, start_date, end_date):
        """Render transactions for the report range and return the written path."""
        pass
