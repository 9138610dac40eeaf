"""Member Admin example application for custodia."""
