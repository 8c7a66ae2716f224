"""Single-card extraction pipeline (LangGraph).

Public API::

    from cardscout.pipeline import crawl_card
    result = crawl_card("https://www.example-bank.com/credit-cards/millennia")
"""

from cardscout.pipeline.runner import crawl_card
from cardscout.pipeline.state import CardResult

__all__ = ["crawl_card", "CardResult"]
