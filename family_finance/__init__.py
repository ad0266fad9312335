"""Top-level package for the family finance tracker.

The primary modules are:

* ``installments`` - expands one entry into a series of monthly records
* ``aggregation`` - month-scoped totals, breakdowns and projections
* ``ledger`` - family-partitioned storage of transactions and debts
* ``assistant`` - Gemini-backed text parsing and forecasting
* ``export`` - CSV export of a family's transactions
* ``dashboard`` - the Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run family_finance/dashboard.py
```
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import installments  # noqa: F401  # re-exported for convenience
from . import ledger  # noqa: F401  # re-exported for convenience

__all__ = ["aggregation", "installments", "ledger"]
