from app.psp.dispatcher import PSPDispatcher, get_dispatcher


def get_psp_dispatcher() -> PSPDispatcher:
    """
    Dependency returning the process-wide PSP dispatcher.
    Overridden in tests through app.dependency_overrides.
    """
    return get_dispatcher()
