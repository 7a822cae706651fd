"""Application services that sit between routers and the backend."""
