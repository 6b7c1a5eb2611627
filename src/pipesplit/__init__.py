"""Split over-length pipe runs into standard lengths joined by unions.

The splitting core lives in ``pipesplit.splitting``; ``pipesplit.model``
is the host document it works against and ``pipesplit.driver`` runs
project files.
"""

__version__ = "0.1.0"
