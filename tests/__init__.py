"""
templateforge test suite
========================

Test Modules
------------
- test_naming.py: Name validation and token replacement
- test_models.py: Pydantic configuration and manifest models
- test_paths.py: Rename planning and application
- test_rewriter.py: Content rewriting
- test_commands.py: External command runners
- test_renamer.py: End-to-end rename workflow
- test_plugins.py: Plugin installation
- test_cli.py: Command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=src/templateforge

    # Run specific test class
    pytest tests/test_renamer.py::TestRenameWorkflow
"""
