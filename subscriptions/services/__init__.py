# Services package.
#
#   database_service  generic find/create/update/delete/count over any model
#   base              ResourceService: shared reads, delete, count, error policy
#   user_service      UserService (unique key: email)
#   plan_service      SubscriptionPlanService (unique key: slug, cached reads)
#
# Resource services receive a DatabaseService (and, for plans, an optional
# CacheManager) through their constructor; the router layer builds them
# per request via the dependencies in ``subscriptions.dependencies``.
