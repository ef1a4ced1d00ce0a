"""eWON M2Web client.

Async client for the Talk2M M2Web REST API: list the eWONs registered under
a corporate account and look one up by id or by name.
"""

__version__ = "0.1.0"
