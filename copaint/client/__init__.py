from copaint.client.replica import CanvasReplica

__all__ = ["CanvasReplica"]
