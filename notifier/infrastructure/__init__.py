"""Infrastructure layer: persistence, transports and realtime fan-out."""
