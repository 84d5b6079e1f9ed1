# Repositories package.
#
# Thin persistence adapters around an AsyncSession.  They own nothing but
# SQL: caching decisions live in the services package.
