GET_NONCE = "/nonce"
GET_RELAY_PAYLOAD = "/relay-payload"
GET_TRANSACTION = "/transaction"
GET_TRANSACTIONS = "/transactions"
GET_DEPLOYED = "/deployed"
SUBMIT_TRANSACTION = "/submit"
