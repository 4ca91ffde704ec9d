"""Heuristic dependency inference between plan tasks."""
