"""Runtime helpers: metrics facade and the index build output queue."""
