# kvgateway distributed module
# Outbound communication with the reverse proxy and the placement service
