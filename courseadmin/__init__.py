"""Course administration: in-memory data layer and CRUD sync for a remote record store."""
