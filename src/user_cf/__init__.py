"""User-user collaborative filtering over a small, explicit utility matrix.

Core idea:
- Compare every pair of users over the items both rated (pearson / cosine / euclidean)
- Keep each user's top-k most similar peers as a fixed neighbour pool
- Predict each missing rating from the neighbours who rated that item
- Rank every unseen item per user by its predicted rating
"""
