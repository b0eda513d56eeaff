from discord_feed_post.main import main

main()
