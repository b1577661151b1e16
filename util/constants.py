# util/constants.py
class InternalURIs:
    API = "/api"
    GENERATE = API + "/generate"
    STATS = API + "/stats"
    HEALTH = "/healthz"


class ExternalURIs:
    GITHUB_API = "https://api.github.com"
    GISTS = "/gists"
