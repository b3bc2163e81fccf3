"""randrelay.integrations

External collaborators: the drand beacon and the EVM chain.
"""
