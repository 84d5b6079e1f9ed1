# Services package.
#
#   transaction_service  — cache-aside coordinator for an owner's
#                          transactions and their summary
#
# Services are constructed per request with their collaborators (store,
# cache) passed in, so tests can substitute either one.
