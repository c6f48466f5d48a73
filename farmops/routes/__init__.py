"""HTTP routers for the analytics views."""
