"""
Canned tutor replies for the anonymous demo conversation.
Deterministic keyword matching over ordered topic buckets.
"""

import re
from typing import List, Optional, Pattern, Tuple

from ollie.shared.config import settings

DEMO_WELCOME_MESSAGE = (
    "Hi there! I'm Ollie, your learning buddy! 🦉 Ask me anything about space, "
    "animals, dinosaurs, science or math and let's discover something amazing together!"
)

LIMIT_REACHED_MESSAGE = (
    "I'm having so much fun learning with you! 🎉 You've used all your free messages "
    "for today. Ask a grown-up to sign you up so we can keep exploring together, "
    "or come back tomorrow for more questions!"
)

FALLBACK_RESPONSE = (
    "What a great question! 🌟 I love how curious you are. In the full version I can "
    "dig into any topic with you. Try asking me about space, dinosaurs, animals, "
    "volcanoes or math!"
)

# (keywords, reply), checked in order; the first bucket with a match wins
TOPIC_BUCKETS: List[Tuple[List[str], str]] = [
    (["black hole"], (
        "Black holes are places in space where gravity pulls so hard that nothing can "
        "escape, not even light! 🌌 They form when a really big star runs out of fuel "
        "and collapses in on itself. Scientists find them by watching how stars and gas "
        "swirl around them. The closest one we know of is about 1,500 light-years away, "
        "so we're totally safe!"
    )),
    (["sun"], (
        "The Sun is a giant star at the center of our Solar System! ☀️ It's so big that "
        "about one million Earths could fit inside it. Its light takes about 8 minutes "
        "to reach us, and it gives Earth the warmth and energy that plants and animals need."
    )),
    (["moon"], (
        "The Moon is Earth's closest neighbor in space! 🌙 It doesn't make its own light. "
        "It shines because sunlight bounces off it. Astronauts first walked on the Moon "
        "in 1969, and their footprints are still there because there's no wind to blow them away!"
    )),
    (["planet", "mars", "jupiter", "saturn", "venus", "mercury", "neptune", "uranus",
      "solar system", "star", "galaxy", "space", "astronaut", "rocket"], (
        "Space is full of wonders! 🚀 Our Solar System has eight planets. Jupiter is the "
        "biggest, so big that all the other planets could fit inside it, and Saturn has "
        "beautiful rings made of ice and rock. Every star you see at night is a sun, and "
        "some are much bigger than ours!"
    )),
    (["dinosaur", "t-rex", "t rex", "tyrannosaurus", "triceratops", "fossil"], (
        "Dinosaurs lived on Earth for about 165 million years! 🦕 The T-Rex had teeth as "
        "long as bananas, and the Argentinosaurus was as long as three school buses. We "
        "learn about them from fossils, which are bones and footprints turned to stone."
    )),
    (["ocean", "sea", "whale", "shark", "dolphin", "octopus", "fish", "jellyfish", "coral"], (
        "The ocean covers more than two thirds of our planet! 🌊 The blue whale lives "
        "there and it's the biggest animal that has ever lived, even bigger than the "
        "dinosaurs. Octopuses have three hearts and can change color to hide!"
    )),
    (["dog", "cat", "puppy", "puppies", "kitten", "pet", "hamster", "rabbit", "bunny",
      "bunnies", "goldfish"], (
        "Pets are wonderful friends! 🐶 Dogs can smell thousands of times better than "
        "people, and cats spend about two thirds of their day sleeping. Taking care of a "
        "pet means giving it food, water, exercise and lots of love."
    )),
    (["bird", "eagle", "penguin", "owl", "parrot", "hummingbird", "feather"], (
        "Birds are the only animals with feathers! 🐦 Hummingbirds can fly backwards, "
        "owls can turn their heads almost all the way around, and penguins can't fly at "
        "all but they are amazing swimmers."
    )),
    (["insect", "bug", "ant", "bee", "butterfly", "butterflies", "spider", "ladybug",
      "caterpillar"], (
        "Insects are tiny but mighty! 🐝 Every insect has six legs and three body parts. "
        "Bees visit flowers to make honey and help plants grow fruit, and a caterpillar "
        "turns into a butterfly through a change called metamorphosis. Spiders have eight "
        "legs, so they aren't insects at all!"
    )),
    (["animal", "lion", "elephant", "tiger", "giraffe", "zebra", "monkey", "bear",
      "cheetah", "kangaroo", "wildlife"], (
        "Animals are amazing! 🦁 Elephants can recognize themselves in a mirror, "
        "cheetahs can run as fast as a car on the highway, and a giraffe's tongue is "
        "long enough to clean its own ears!"
    )),
    (["plant", "flower", "tree", "seed", "leaf", "leaves", "photosynthesis", "garden"], (
        "Plants are like little food factories! 🌱 They use sunlight, water and air to "
        "make their own food in a process called photosynthesis. While they do it, they "
        "release the oxygen we breathe. Every seed holds a tiny baby plant waiting to grow!"
    )),
    (["fraction", "half", "halves", "quarter", "numerator", "denominator"], (
        "Fractions are parts of a whole! 🍕 If you cut a pizza into 4 equal slices and "
        "eat 1, you ate 1/4 of the pizza. The bottom number tells how many equal parts "
        "there are, and the top number tells how many parts you have."
    )),
    (["math", "add", "addition", "subtract", "multiply", "multiplication", "divide",
      "division", "number", "plus", "minus", "times table", "count"], (
        "Math is like a superpower for solving puzzles! 🔢 Adding puts groups together, "
        "subtracting takes some away, and multiplying is a fast way to add the same "
        "number again and again. Want to try one? What is 3 groups of 4?"
    )),
    (["water cycle", "evaporation", "condensation", "precipitation", "evaporate"], (
        "The water cycle is how water travels around our planet! 💧 The Sun warms water "
        "so it evaporates into the air, the vapor cools and condenses into clouds, and "
        "then it falls back down as rain or snow. The water you drink today might once "
        "have been drunk by a dinosaur!"
    )),
    (["volcano", "lava", "magma", "erupt", "eruption"], (
        "Volcanoes are openings in the Earth's crust! 🌋 Deep underground, rock gets so "
        "hot that it melts into magma. When pressure builds up, the magma bursts out and "
        "we call it lava. Some islands, like Hawaii, were made by volcanoes!"
    )),
    (["rainbow"], (
        "Rainbows happen when sunlight shines through raindrops! 🌈 Each drop bends the "
        "light and splits it into seven colors: red, orange, yellow, green, blue, indigo "
        "and violet. To see one, stand with the Sun behind you and the rain in front."
    )),
    (["electricity", "electric", "battery", "circuit", "lightning", "magnet"], (
        "Electricity is the flow of tiny particles called electrons! ⚡ It travels "
        "through wires in a loop called a circuit to power lights and toys. Lightning is "
        "a giant spark of electricity in the sky, and it's hotter than the surface of the Sun!"
    )),
    (["egypt", "pyramid", "pharaoh", "mummy", "mummies", "rome", "roman", "greek",
      "ancient", "knight", "castle", "history"], (
        "History is full of amazing stories! 🏛️ The ancient Egyptians built the Great "
        "Pyramid more than 4,500 years ago using huge stone blocks, and the Romans built "
        "roads so well that some are still used today."
    )),
    (["body", "heart", "bone", "brain", "muscle", "teeth", "tooth", "blood", "healthy",
      "health", "exercise", "germ", "skeleton"], (
        "Your body is incredible! 💪 Your heart beats about 100,000 times every day, "
        "you have 206 bones, and your brain sends messages faster than a race car. "
        "Eating fruits and veggies, drinking water and playing outside keep it strong!"
    )),
    (["weather", "rain", "snow", "storm", "tornado", "hurricane", "wind", "cloud",
      "thunder", "sunny", "temperature"], (
        "Weather is what the air outside is doing right now! ⛅ Clouds are made of tiny "
        "water droplets, snowflakes always have six sides, and scientists called "
        "meteorologists use special tools to predict tomorrow's weather."
    )),
    (["hi", "hello", "hey", "hiya", "howdy", "good morning", "good afternoon",
      "good evening"], (
        "Hello, friend! 👋 I'm so happy you're here! What would you like to learn about "
        "today? I know lots about space, animals, dinosaurs, science and math!"
    )),
]


def _compile(keywords: List[str]) -> Pattern:
    alternatives = "|".join(re.escape(k) for k in keywords)
    # Whole words with an optional plural ending
    return re.compile(rf"\b(?:{alternatives})(?:s|es)?\b")


_COMPILED_BUCKETS = [(_compile(keywords), reply) for keywords, reply in TOPIC_BUCKETS]


def match_topic(text: str) -> Optional[str]:
    """Reply for the first matching topic bucket, or None."""
    normalized = text.strip().lower()
    for pattern, reply in _COMPILED_BUCKETS:
        if pattern.search(normalized):
            return reply
    return None


def demo_response(text: str) -> str:
    return match_topic(text) or FALLBACK_RESPONSE


def typing_delay_ms(
    text: str,
    min_ms: Optional[int] = None,
    max_ms: Optional[int] = None,
    per_char_ms: Optional[int] = None
) -> int:
    """Reply delay proportional to its length, clamped to [min_ms, max_ms]."""
    min_ms = settings.demo.min_typing_delay_ms if min_ms is None else min_ms
    max_ms = settings.demo.max_typing_delay_ms if max_ms is None else max_ms
    per_char_ms = settings.demo.typing_ms_per_char if per_char_ms is None else per_char_ms
    return max(min_ms, min(max_ms, len(text) * per_char_ms))
