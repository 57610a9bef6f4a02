from splitstack.handlers.basic import basic_router
from splitstack.handlers.receipts import receipts_router
from splitstack.handlers.stacks import stacks_router

__all__ = ["basic_router", "receipts_router", "stacks_router"]
