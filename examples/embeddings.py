"""Embed a query and a batch of documents with Gemini."""

import asyncio

from genai_bridge import GeminiEmbeddings


async def main():
    query_embeddings = GeminiEmbeddings(task_type="RETRIEVAL_QUERY", output_dimensionality=256)
    vector = await query_embeddings.embed_query(
        "What would be a good company name for a company that makes colorful socks?"
    )
    print(f"query vector: {len(vector)} dims")

    doc_embeddings = GeminiEmbeddings(task_type="RETRIEVAL_DOCUMENT", title="Company names")
    docs = [f"Document number {i}\nabout socks" for i in range(250)]
    vectors = await doc_embeddings.embed_documents(docs)
    failed = sum(1 for v in vectors if not v)
    print(f"{len(vectors)} document vectors, {failed} failed")


if __name__ == "__main__":
    asyncio.run(main())
