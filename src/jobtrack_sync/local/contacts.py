"""
contacts.py - Local data access for application contacts.
"""

from jobtrack_sync.local.base import MutableLocalDataSource
from jobtrack_sync.models import Contact


class ContactLocalDataSource(MutableLocalDataSource[Contact]):
    RECORD = Contact
    ORDER_BY = "contactName COLLATE NOCASE ASC"
