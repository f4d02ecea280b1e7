"""Remote session client: backend API, push transport, connection lifecycle, rendering."""
