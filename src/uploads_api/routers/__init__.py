"""HTTP routers for the Uploads API."""
