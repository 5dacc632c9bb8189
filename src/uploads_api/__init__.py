"""Upload, list, download and delete files kept on the local filesystem."""
