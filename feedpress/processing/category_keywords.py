"""
Keyword dictionaries for deterministic category scoring.

Keys are matched case-insensitively against category names. Categories
without an entry score zero.
"""

from typing import Dict, List

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "technology": [
        "technology", "tech", "software", "hardware", "ai", "artificial intelligence",
        "machine learning", "programming", "coding", "startup", "innovation", "digital",
        "computer", "internet", "app", "mobile", "cybersecurity", "blockchain",
        "cryptocurrency", "bitcoin", "virtual reality", "augmented reality", "algorithm",
        "cloud", "database", "server", "network", "wireless", "5g", "smartphone", "laptop",
        "google", "apple", "microsoft", "nvidia", "intel",
    ],
    "politics": [
        "politics", "political", "government", "election", "vote", "democrat", "republican",
        "congress", "senate", "president", "policy", "legislation", "law", "bill", "campaign",
        "politician", "senator", "governor", "mayor", "democracy", "constitution", "amendment",
        "federal", "bipartisan", "partisan", "lobbying", "polls", "debate", "rally",
        "inauguration", "impeachment", "veto", "executive order", "supreme court", "cabinet",
    ],
    "business": [
        "business", "economy", "market", "stock", "finance", "financial", "investment",
        "company", "corporate", "entrepreneur", "revenue", "profit", "trade", "commerce",
        "industry", "wall street", "nasdaq", "dow jones", "federal reserve", "interest rate",
        "inflation", "recession", "gdp", "earnings", "quarterly", "merger", "acquisition",
        "ipo", "venture capital", "private equity", "hedge fund", "bond", "treasury",
        "commodity", "real estate", "mortgage", "loan", "credit", "debt", "bankruptcy",
        "layoff", "unemployment",
    ],
    "sports": [
        "sports", "football", "basketball", "baseball", "soccer", "tennis", "golf",
        "olympics", "championship", "tournament", "match", "player", "team", "coach",
        "athlete", "nfl", "nba", "mlb", "nhl", "ncaa", "super bowl", "world series",
        "stanley cup", "quarterback", "pitcher", "goalie", "striker", "referee", "umpire",
        "touchdown", "home run", "playoff", "free agency", "trade deadline",
    ],
    "entertainment": [
        "entertainment", "movie", "film", "music", "celebrity", "actor", "actress", "singer",
        "artist", "hollywood", "tv", "television", "concert", "award", "oscar", "grammy",
        "emmy", "golden globe", "billboard", "album", "tour", "red carpet", "premiere",
        "director", "producer", "comedian", "podcast", "streaming", "netflix", "hbo",
        "influencer",
    ],
    "health": [
        "health", "medical", "medicine", "doctor", "hospital", "disease", "treatment",
        "vaccine", "covid", "coronavirus", "wellness", "fitness", "nutrition",
        "mental health", "therapy", "pharmaceutical", "drug", "medication", "surgery",
        "diagnosis", "symptom", "patient", "clinic", "nurse", "cancer", "diabetes",
        "heart disease", "stroke", "alzheimer", "dementia", "depression", "anxiety",
        "addiction", "psychiatry", "cardiology", "oncology",
    ],
    "science": [
        "science", "scientific", "research", "study", "discovery", "experiment",
        "laboratory", "scientist", "physics", "chemistry", "biology", "space", "astronomy",
        "nasa", "space station", "mars", "moon", "planet", "galaxy", "universe", "dna",
        "gene", "molecule", "atom", "particle", "quantum", "evolution", "genetics",
        "neuroscience", "archaeology", "geology", "fossil", "species", "protein",
    ],
    "world": [
        "world", "international", "global", "foreign", "country", "nation", "diplomacy",
        "foreign policy", "immigration", "refugee", "war", "conflict", "peace", "treaty",
        "united nations", "nato", "european union", "brexit", "embassy", "ambassador",
        "diplomat", "sanction", "tariff", "nuclear", "missile", "terrorism", "protest",
        "revolution", "coup", "human rights", "civil war",
    ],
    "education": [
        "education", "school", "university", "college", "student", "teacher", "academic",
        "learning", "curriculum", "degree", "scholarship", "professor", "lecturer", "dean",
        "principal", "kindergarten", "elementary", "high school", "community college",
        "graduate school", "phd", "diploma", "online learning", "homeschooling", "tuition",
        "financial aid",
    ],
    "environment": [
        "environment", "climate", "weather", "pollution", "renewable", "solar", "wind",
        "energy", "conservation", "wildlife", "nature", "forest", "ocean", "sustainability",
        "global warming", "climate change", "greenhouse gas", "carbon", "emission",
        "fossil fuel", "clean energy", "electric vehicle", "recycling", "plastic", "waste",
        "biodiversity", "endangered species", "deforestation", "drought", "flood",
        "hurricane", "wildfire", "air quality", "agriculture",
    ],
}


def keywords_for(category_name: str) -> List[str]:
    return CATEGORY_KEYWORDS.get(category_name.strip().lower(), [])
