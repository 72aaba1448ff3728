from feed import RepositoryFeed

def main():
    print("=== RepoFeed: discover GitHub repositories ===")
    language = input("Language filter (leave empty for all): ").strip() or None
    kind = input("Feed kind - (r)andom popular or (n)ew this week [r]: ").strip().lower()
    feed_kind = "new" if kind.startswith("n") else "random"

    feed = RepositoryFeed.for_language(feed_kind, language)

    while True:
        chunk = feed.request_more()
        if chunk.error_message:
            print(f"\n{chunk.error_message}")
        elif not chunk.items:
            print("\nNo repositories found.")

        for i, repo in enumerate(chunk.items, len(feed.repositories) - len(chunk.items) + 1):
            print(f"{i}. {repo['full_name']} | ★ {repo['stars']}")
            desc = repo['description'] or "No description"
            print(f"   {desc[:100]}")
            print(f"   {repo['url']}")
        print("-" * 30)

        action = input("\n[Enter] more, (r)eset, (q)uit: ").strip().lower()
        if action in ['q', 'quit', 'exit']:
            break
        if action == 'r':
            feed.reset()
            print("Feed reset.")

if __name__ == "__main__":
    main()
