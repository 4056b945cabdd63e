"""
Site Log Assistant - Action Item Command Dispatcher

Turns a construction assistant's free-text reply into a single, validated
mutation against the project's action-item store.
"""

__version__ = "0.1.0"
__author__ = "Site Log Team"
