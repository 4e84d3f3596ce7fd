"""
Smoke tests to verify all modules can be imported.
"""

def test_import_records_core():
    import records_core
    assert hasattr(records_core, '__version__')


def test_import_store():
    import store
    assert hasattr(store, '__version__')


def test_import_manager():
    import manager
    assert hasattr(manager, '__version__')
