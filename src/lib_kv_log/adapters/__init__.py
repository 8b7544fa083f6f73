"""Concrete collaborators implementing the application ports."""
