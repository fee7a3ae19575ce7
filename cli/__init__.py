"""
Command Line Interface Module
"""
from .main import BakeOffCLI, ConsoleReporter, main

__all__ = ['BakeOffCLI', 'ConsoleReporter', 'main']
