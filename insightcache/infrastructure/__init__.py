"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (file system, configuration
files, console) by implementing the interfaces defined in the domain layer.
"""
