"""Form submissions -- ORM models, camelCase schemas, FormRepository and the submit pipeline."""
