"""User interface modules.

The CLI is installed as the ``ops-assistant`` script or run with
``python -m ops_assistant.interface.cli``; it is not imported here so that
running it as a module does not load it twice.
"""
