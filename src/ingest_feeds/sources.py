RSS_FEEDS = {
    # BBC
    "bbc": "https://feeds.bbci.co.uk/news/rss.xml",
    "bbc-world": "https://feeds.bbci.co.uk/news/world/rss.xml",
    "bbc-business": "https://feeds.bbci.co.uk/news/business/rss.xml",
    "bbc-technology": "https://feeds.bbci.co.uk/news/technology/rss.xml",
    # CNN
    "cnn": "http://rss.cnn.com/rss/edition.rss",
    "cnn-world": "http://rss.cnn.com/rss/edition_world.rss",
    "cnn-technology": "http://rss.cnn.com/rss/edition_technology.rss",
    # Fox News
    "fox": "https://moxie.foxnews.com/google-publisher/latest.xml",
    "fox-world": "https://moxie.foxnews.com/google-publisher/world.xml",
    # The Guardian
    "guardian-world": "https://www.theguardian.com/world/rss",
    "guardian-uk": "https://www.theguardian.com/uk-news/rss",
    "guardian-us": "https://www.theguardian.com/us-news/rss",
    "guardian-business": "https://www.theguardian.com/business/rss",
    "guardian-technology": "https://www.theguardian.com/technology/rss",
    # NPR
    "npr-news": "https://feeds.npr.org/1001/rss.xml",
    "npr-world": "https://feeds.npr.org/1004/rss.xml",
    "npr-business": "https://feeds.npr.org/1006/rss.xml",
    "npr-technology": "https://feeds.npr.org/1019/rss.xml",
    # Sky News
    "sky": "https://feeds.skynews.com/feeds/rss/home.xml",
    "sky-world": "https://feeds.skynews.com/feeds/rss/world.xml",
    "sky-business": "https://feeds.skynews.com/feeds/rss/business.xml",
    "sky-technology": "https://feeds.skynews.com/feeds/rss/technology.xml",
    # The Telegraph
    "telegraph": "https://www.telegraph.co.uk/rss.xml",
    "telegraph-news": "https://www.telegraph.co.uk/news/rss.xml",
    "telegraph-business": "https://www.telegraph.co.uk/business/rss.xml",
    # Yahoo News
    "yahoo": "https://news.yahoo.com/rss/",
    "yahoo-world": "https://news.yahoo.com/rss/world",
    "yahoo-business": "https://news.yahoo.com/rss/business",
}
