def test_dockstart_imports():
    """Verify all dockstart submodules can be imported without errors."""
    import dockstart
    import dockstart.core.config
    import dockstart.core.logging
    import dockstart.detector
    import dockstart.detector.go
    import dockstart.detector.python
    import dockstart.detector.registry
    import dockstart.detector.rust

    assert dockstart is not None
