"""Built-in category pools.

Mini category ids follow the pool segments used for breadth scoring:
c1-c110 general, c111-c160 medium, c161-c180 mixed, c181+ narrow.
"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CategoryItem:
    id: str
    name: str


# Broad themes for the locked grand category of a match
BASE_CATEGORY_POOL: Tuple[CategoryItem, ...] = (
    CategoryItem("animals", "Animals"),
    CategoryItem("foods", "Foods"),
    CategoryItem("professions", "Professions"),
    CategoryItem("countries", "Countries"),
    CategoryItem("colors", "Colors"),
    CategoryItem("sports", "Sports"),
    CategoryItem("clothing", "Clothing"),
    CategoryItem("emotions", "Emotions"),
    CategoryItem("household_items", "Household Items"),
    CategoryItem("nature", "Nature"),
    CategoryItem("transportation", "Transportation"),
    CategoryItem("body_parts", "Body Parts"),
    CategoryItem("hobbies", "Hobbies"),
    CategoryItem("music", "Music"),
    CategoryItem("movies", "Movies"),
)

# Round (mini) categories
MINI_CATEGORY_POOL: Tuple[CategoryItem, ...] = (
    # Animals and nature
    CategoryItem("c1", "Animals found in a zoo"),
    CategoryItem("c2", "Animals that swim"),
    CategoryItem("c3", "Birds that can fly"),
    CategoryItem("c4", "Insects with wings"),
    CategoryItem("c5", "Farm animals"),
    CategoryItem("c6", "Pets you can keep at home"),
    CategoryItem("c7", "Animals with tails"),
    CategoryItem("c8", "Animals that lay eggs"),
    CategoryItem("c9", "Flowers found in a garden"),
    CategoryItem("c10", "Trees that lose leaves"),
    CategoryItem("c11", "Things found in a forest"),
    CategoryItem("c12", "Things found at the beach"),
    CategoryItem("c13", "Weather conditions"),
    CategoryItem("c14", "Natural disasters"),
    CategoryItem("c15", "Planets in our solar system"),
    CategoryItem("c16", "Animals that are dangerous"),
    CategoryItem("c17", "Animals that hibernate"),
    CategoryItem("c18", "Sea creatures"),
    CategoryItem("c19", "Jungle animals"),
    CategoryItem("c20", "Arctic animals"),
    # Food and drink
    CategoryItem("c21", "Fruits that are red"),
    CategoryItem("c22", "Vegetables that are green"),
    CategoryItem("c23", "Breakfast foods"),
    CategoryItem("c24", "Pizza toppings"),
    CategoryItem("c25", "Ice cream flavors"),
    CategoryItem("c26", "Sandwich ingredients"),
    CategoryItem("c27", "Things you bake"),
    CategoryItem("c28", "Spicy foods"),
    CategoryItem("c29", "Sweet treats"),
    CategoryItem("c30", "Salty snacks"),
    CategoryItem("c31", "Drinks served hot"),
    CategoryItem("c32", "Carbonated drinks"),
    CategoryItem("c33", "Fried foods"),
    CategoryItem("c34", "Foods you eat with a spoon"),
    CategoryItem("c35", "Italian dishes"),
    CategoryItem("c36", "Mexican dishes"),
    CategoryItem("c37", "Fruits with seeds"),
    CategoryItem("c38", "Dairy products"),
    CategoryItem("c39", "Meat dishes"),
    CategoryItem("c40", "Seafood dishes"),
    # House and home
    CategoryItem("c41", "Things in a kitchen"),
    CategoryItem("c42", "Furniture in a living room"),
    CategoryItem("c43", "Things in a bathroom"),
    CategoryItem("c44", "Items in a bedroom"),
    CategoryItem("c45", "Things found in a garage"),
    CategoryItem("c46", "Kitchen appliances"),
    CategoryItem("c47", "Things you find in a drawer"),
    CategoryItem("c48", "Cleaning supplies"),
    CategoryItem("c49", "Things on a wall"),
    CategoryItem("c50", "Things on a desk"),
    CategoryItem("c51", "Gardening tools"),
    CategoryItem("c52", "Things made of wood"),
    CategoryItem("c53", "Things made of glass"),
    CategoryItem("c54", "Things made of plastic"),
    CategoryItem("c55", "Things made of metal"),
    CategoryItem("c56", "Sharp objects"),
    CategoryItem("c57", "Soft objects"),
    CategoryItem("c58", "Heavy objects"),
    CategoryItem("c59", "Electronic devices"),
    CategoryItem("c60", "Things with buttons"),
    # People and professions
    CategoryItem("c61", "Jobs that require a uniform"),
    CategoryItem("c62", "Medical professions"),
    CategoryItem("c63", "Jobs that work outside"),
    CategoryItem("c64", "Jobs involving animals"),
    CategoryItem("c65", "Family members"),
    CategoryItem("c66", "Words describing personality"),
    CategoryItem("c67", "Positive traits"),
    CategoryItem("c68", "Negative traits"),
    CategoryItem("c69", "Famous male actors"),
    CategoryItem("c70", "Famous female singers"),
    CategoryItem("c71", "Superheroes"),
    CategoryItem("c72", "Villains"),
    CategoryItem("c73", "Historical figures"),
    CategoryItem("c74", "Fictional characters"),
    CategoryItem("c75", "Sports players"),
    CategoryItem("c76", "Things a baby does"),
    CategoryItem("c77", "Things a teacher uses"),
    CategoryItem("c78", "Things a doctor uses"),
    CategoryItem("c79", "Things a chef uses"),
    CategoryItem("c80", "Things an artist uses"),
    # Places and travel
    CategoryItem("c81", "Countries in Europe"),
    CategoryItem("c82", "Countries in Asia"),
    CategoryItem("c83", "Cities in the USA"),
    CategoryItem("c84", "Capital cities"),
    CategoryItem("c85", "Places to go on vacation"),
    CategoryItem("c86", "Things found at an airport"),
    CategoryItem("c87", "Things found in a hotel"),
    CategoryItem("c88", "Modes of transportation"),
    CategoryItem("c89", "Things with wheels"),
    CategoryItem("c90", "Things that fly"),
    CategoryItem("c91", "Things that float"),
    CategoryItem("c92", "Camping equipment"),
    CategoryItem("c93", "Things you pack in a suitcase"),
    CategoryItem("c94", "Places to swim"),
    CategoryItem("c96", "Rooms in a house"),
    CategoryItem("c97", "Shops in a mall"),
    CategoryItem("c98", "Places to eat"),
    CategoryItem("c99", "Tourist attractions"),
    CategoryItem("c100", "Continents"),
    # Clothing and accessories
    CategoryItem("c101", "Winter clothing"),
    CategoryItem("c102", "Summer clothing"),
    CategoryItem("c103", "Footwear"),
    CategoryItem("c104", "Headwear"),
    CategoryItem("c105", "Jewelry"),
    CategoryItem("c106", "Things you wear on your hands"),
    CategoryItem("c107", "Things with zippers"),
    CategoryItem("c108", "Things with pockets"),
    CategoryItem("c109", "Makeup items"),
    CategoryItem("c110", "Hair accessories"),
    # Sports and hobbies
    CategoryItem("c111", "Team sports"),
    CategoryItem("c112", "Water sports"),
    CategoryItem("c113", "Winter sports"),
    CategoryItem("c114", "Ball games"),
    CategoryItem("c115", "Olympic events"),
    CategoryItem("c116", "Board games"),
    CategoryItem("c117", "Card games"),
    CategoryItem("c118", "Musical instruments"),
    CategoryItem("c119", "Types of dance"),
    CategoryItem("c120", "Art supplies"),
    CategoryItem("c121", "Outdoor activities"),
    CategoryItem("c122", "Gym equipment"),
    CategoryItem("c123", "Hobbies you do alone"),
    CategoryItem("c124", "Hobbies you do in groups"),
    CategoryItem("c125", "Things you collect"),
    # Abstract concepts
    CategoryItem("c126", "Words describing speed"),
    CategoryItem("c127", "Words describing size"),
    CategoryItem("c128", "Words describing sound"),
    CategoryItem("c129", "Words describing smell"),
    CategoryItem("c130", "Words describing texture"),
    CategoryItem("c131", "Colors found in nature"),
    CategoryItem("c132", "Shades of blue"),
    CategoryItem("c133", "Shades of red"),
    CategoryItem("c134", "Units of measurement"),
    CategoryItem("c135", "Mathematical terms"),
    CategoryItem("c136", "Scientific fields"),
    CategoryItem("c137", "School subjects"),
    CategoryItem("c138", "Languages"),
    CategoryItem("c139", "Currencies"),
    CategoryItem("c140", "Holidays"),
    # Actions
    CategoryItem("c141", "Things you do at a party"),
    CategoryItem("c142", "Things you do in the morning"),
    CategoryItem("c143", "Things you do before bed"),
    CategoryItem("c144", "Things you do at school"),
    CategoryItem("c145", "Things you do at work"),
    CategoryItem("c146", "Ways to cook food"),
    CategoryItem("c147", "Ways to move"),
    CategoryItem("c148", "Ways to communicate"),
    CategoryItem("c149", "Noises animals make"),
    CategoryItem("c150", "Noises humans make"),
    # Entertainment and media
    CategoryItem("c151", "Movie genres"),
    CategoryItem("c152", "Music genres"),
    CategoryItem("c153", "TV show genres"),
    CategoryItem("c154", "Disney movies"),
    CategoryItem("c155", "Pixar movies"),
    CategoryItem("c156", "Video game genres"),
    CategoryItem("c157", "Social media apps"),
    CategoryItem("c158", "Computer parts"),
    CategoryItem("c159", "Smartphone brands"),
    CategoryItem("c160", "Car brands"),
    # Miscellaneous
    CategoryItem("c161", "Things that are sticky"),
    CategoryItem("c162", "Things that are cold"),
    CategoryItem("c163", "Things that are hot"),
    CategoryItem("c164", "Things that are round"),
    CategoryItem("c165", "Things that are square"),
    CategoryItem("c166", "Things that are flat"),
    CategoryItem("c167", "Things that smell good"),
    CategoryItem("c168", "Things that smell bad"),
    CategoryItem("c169", "Things that make noise"),
    CategoryItem("c170", "Things that are silent"),
    CategoryItem("c171", "Things you can recycle"),
    CategoryItem("c172", "Things you throw away"),
    CategoryItem("c173", "Things in a toolbox"),
    CategoryItem("c174", "Things in a first aid kit"),
    CategoryItem("c175", "Things in a purse"),
    CategoryItem("c176", "Things in a wallet"),
    CategoryItem("c177", "Things in a backpack"),
    CategoryItem("c178", "Things in a glove compartment"),
    CategoryItem("c179", "Things in a refrigerator"),
    CategoryItem("c180", "Things in a pantry"),
    # Narrow and word-structure categories
    CategoryItem("c181", "Words ending in 'Y'"),
    CategoryItem("c182", "Words with double letters"),
    CategoryItem("c183", "Palindromes"),
    CategoryItem("c184", "Compound words"),
    CategoryItem("c185", "Rhyming words"),
    CategoryItem("c186", "Three-letter words"),
    CategoryItem("c187", "Five-letter words"),
    CategoryItem("c188", "Words starting with vowels"),
    CategoryItem("c189", "Constellations"),
    CategoryItem("c190", "Chemical elements"),
    CategoryItem("c191", "Bones in the body"),
    CategoryItem("c192", "Internal organs"),
    CategoryItem("c193", "Presidents/Leaders"),
    CategoryItem("c194", "Capital cities in Europe"),
    CategoryItem("c195", "Rivers"),
    CategoryItem("c196", "Mountains"),
    CategoryItem("c197", "Oceans and Seas"),
    CategoryItem("c198", "Islands"),
    CategoryItem("c199", "Deserts"),
    CategoryItem("c200", "Gemstones"),
    CategoryItem("c201", "Dog breeds"),
    CategoryItem("c202", "Cat breeds"),
    CategoryItem("c203", "Bird species"),
    CategoryItem("c204", "Fish species"),
    CategoryItem("c205", "Tree types"),
)
