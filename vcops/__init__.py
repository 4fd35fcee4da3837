#!/usr/bin/env python
# vim: ts=4 sw=4 et
""" Logging metaclass."""
import logging

__version__ = '0.1.0'


class Log(type):
    """ Metaclass that attaches a module logger to every class. """
    def __init__(cls, name, args, kwargs):
        """
        Args:
            name (str): Becomes __name__ attribute
            args (tuple): Becomes __bases__ attribute
            kwargs (dict): Becomes __dict__ attribute
        """
        super(Log, cls).__init__(name, args, kwargs)

        cls.logger = logging.getLogger(cls.__module__)


# pylint: disable=too-few-public-methods
class Logger(metaclass=Log):
    """ Allows any class to easily have logging. """
