"""
minimalprompt: drive a language model that runs commands and writes files in a
project directory, asking the user whenever it stops on its own.
"""

__version__ = "0.1.0"
