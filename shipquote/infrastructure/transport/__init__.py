"""HTTP transport adapters implementing the Transport port."""
