"""Application services: the client facade, its wrappers and the transition workflow."""
