"""
beanscope: expose in-process managed resources as XML documents and
invoke their operations remotely.
"""

__version__ = "0.1.0"
