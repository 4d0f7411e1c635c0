from summary_worker.api.routes import router

__all__ = ["router"]
