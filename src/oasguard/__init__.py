"""oasguard: API design guideline checks for OpenAPI and Swagger documents."""
