"""Media services: chunked upload pipeline and the external object store."""
