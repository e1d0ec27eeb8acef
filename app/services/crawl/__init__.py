"""Crawl subsystem for the edu.tatar.ru institution catalog.

Structure:
- base.py: records, districts, categories, errors and run bookkeeping
- fetcher.py: httpx retrieval + selectolax parsing (failures yield None)
- extract.py: regex rules for number, student count and id
- navigator.py: link/field extraction per page level
- store.py: append-only CSV record store
- orchestrator.py: the districts -> categories -> institutions walk
- runner.py: small CLI entrypoint for manual runs
"""

__all__ = [
    "base",
    "orchestrator",
    "store",
]
